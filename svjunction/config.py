import argparse
import json
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .constants import GENOTYPE_MODEL, SAMPLE_ROLE, STREAM
from .error import ConfigurationError
from .junction_id import DEFAULT_ID_PREFIX
from .schemas import get_by_prefix, validate_config
from .util import cast_boolean, filepath, logger


@dataclass
class RunOptions:
    """
    settings for a single writer run. The analysis mode follows from the samples given: normal only is a
    germline run, tumor only is a tumor-only run and both is a tumor/normal somatic run
    """

    output_dir: str
    normal_bams: List[str] = field(default_factory=list)
    tumor_bams: List[str] = field(default_factory=list)
    sample_names: Dict[SAMPLE_ROLE, Optional[str]] = field(default_factory=dict)
    rna: bool = False
    report_candidates: bool = True
    min_scored_variant_size: int = 50
    min_quality: float = 20
    min_somatic_score: float = 10
    id_prefix: str = DEFAULT_ID_PREFIX
    regions: List[str] = field(default_factory=list)
    counts_file: Optional[str] = None

    def __post_init__(self):
        if not self.normal_bams and not self.tumor_bams:
            raise ConfigurationError('at least one normal or tumor alignment file is required')
        if self.rna and self.tumor_bams:
            raise ConfigurationError('tumor samples are not supported in RNA mode')
        self.sample_names = {SAMPLE_ROLE(role): name for role, name in self.sample_names.items()}

    @property
    def is_tumor_only(self) -> bool:
        return bool(self.tumor_bams) and not self.normal_bams

    @property
    def is_somatic(self) -> bool:
        return bool(self.tumor_bams) and bool(self.normal_bams)

    @property
    def roles(self) -> List[SAMPLE_ROLE]:
        roles = []
        if self.normal_bams:
            roles.append(SAMPLE_ROLE.NORMAL)
        if self.tumor_bams:
            roles.append(SAMPLE_ROLE.TUMOR)
        return roles

    def bams(self, role: SAMPLE_ROLE) -> List[str]:
        return self.tumor_bams if SAMPLE_ROLE(role) == SAMPLE_ROLE.TUMOR else self.normal_bams

    @property
    def models(self) -> List[GENOTYPE_MODEL]:
        """
        the genotype models every unfiltered junction is scored with
        """
        if self.is_tumor_only:
            return [GENOTYPE_MODEL.TUMOR]
        if self.rna:
            return [GENOTYPE_MODEL.RNA]
        models = [GENOTYPE_MODEL.DIPLOID]
        if self.is_somatic:
            models.append(GENOTYPE_MODEL.SOMATIC)
        return models

    @property
    def streams(self) -> List[STREAM]:
        streams = [STREAM.CANDIDATE] if self.report_candidates else []
        streams.extend([STREAM.from_model(model) for model in self.models])
        return streams

    @classmethod
    def from_config(cls, config: Dict) -> 'RunOptions':
        """
        create the run options from a validated config
        """
        scoring = get_by_prefix(config, 'scoring.')
        return cls(
            output_dir=config['output_dir'],
            normal_bams=list(config['bam.normal']),
            tumor_bams=list(config['bam.tumor']),
            sample_names=get_by_prefix(
                {k: v for k, v in config.items() if v is not None}, 'sample_name.'
            ),
            rna=config['mode.rna'],
            report_candidates=config['mode.report_candidates'],
            min_scored_variant_size=scoring['min_scored_variant_size'],
            min_quality=scoring['min_quality'],
            min_somatic_score=scoring['min_somatic_score'],
            id_prefix=config['output.id_prefix'],
            regions=list(config['regions']),
            counts_file=config['counts'],
        )


def load_config(filename: str) -> Dict:
    """
    read and validate a JSON config file
    """
    logger.info(f'loading: {filename}')
    with open(filename, 'r') as fh:
        config = json.load(fh)
    return validate_config(config)


class CustomHelpFormatter(argparse.ArgumentDefaultsHelpFormatter):
    """
    subclass the default help formatter to stop default printing for required arguments
    """

    def _format_args(self, action, default_metavar):
        if action.metavar is None:
            action.metavar = get_metavar(action.type)
        return super(CustomHelpFormatter, self)._format_args(action, default_metavar)

    def _get_help_string(self, action):
        if action.required:
            return action.help
        return super(CustomHelpFormatter, self)._get_help_string(action)

    def add_arguments(self, actions):
        # sort the arguments alphanumerically so they print in the help that way
        actions = sorted(actions, key=lambda x: getattr(x, 'option_strings'))
        super(CustomHelpFormatter, self).add_arguments(actions)


def get_metavar(arg_type):
    """
    For a given argument type, returns the string to be used for the metavar argument in add_argument

    Example:
        >>> get_metavar(bool)
        '{True,False}'
    """
    if arg_type in [bool, cast_boolean]:
        return '{True,False}'
    elif arg_type == float:
        return 'FLOAT'
    elif arg_type == int:
        return 'INT'
    elif arg_type == filepath:
        return 'FILEPATH'
    return None
