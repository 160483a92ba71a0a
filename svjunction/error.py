class RegionParseError(ValueError):
    """
    raised when a region string cannot be resolved against a bam header
    """

    pass


class MalformedRegionError(RegionParseError):
    """
    raised for region strings which do not follow the CONTIG[:START[-END]] pattern or which
    reference a contig not present in the header
    """

    pass


class InvalidCoordinateError(RegionParseError):
    pass


class ScoringError(Exception):
    """
    raised by a scorer when it is unable to score a single junction for a given genotype model
    """

    pass


class ConfigurationError(ValueError):
    pass


class InvalidRearrangement(Exception):
    pass
