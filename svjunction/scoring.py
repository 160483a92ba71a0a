"""
interface to the scoring model. The scoring statistics themselves live outside of this package, the
writer only needs a score and genotype for each junction under each genotype model
"""
from dataclasses import dataclass
from typing import Optional, Tuple

from .candidate import SVJunction
from .constants import GENOTYPE_MODEL, UNSCORED_FILTER
from .error import ScoringError


@dataclass(frozen=True)
class ModelScore:
    """
    the result of scoring a junction under a single genotype model

    Attributes:
        quality: model specific quality (the somatic score for the somatic model). None if the junction was not scored
        genotype: the genotype call (ex. 0/1)
        filters: filter labels assigned by the scorer
    """

    quality: Optional[float]
    genotype: Optional[str] = None
    filters: Tuple[str, ...] = ()

    @property
    def is_scored(self) -> bool:
        return self.quality is not None

    @classmethod
    def unscored(cls) -> 'ModelScore':
        return cls(None, None, (UNSCORED_FILTER,))

    def with_filter(self, label: str) -> 'ModelScore':
        if label in self.filters:
            return self
        return ModelScore(self.quality, self.genotype, self.filters + (label,))


class SVScorer:
    """
    base class for scorers used by the writer
    """

    def score(self, junction: SVJunction, model: GENOTYPE_MODEL) -> Optional[ModelScore]:
        """
        score a single junction under a genotype model

        Returns:
            the score, or None if the junction could not be scored with this model

        Raises:
            ScoringError: the junction could not be scored
        """
        raise NotImplementedError('abstract method')


class PrecomputedScorer(SVScorer):
    """
    reads scores already attached to the junctions, as loaded from the candidates input file

    Example:
        .. code-block:: json

            {"scores": {"diploid": {"quality": 45, "genotype": "0/1", "filters": []}}}
    """

    def score(self, junction: SVJunction, model: GENOTYPE_MODEL) -> Optional[ModelScore]:
        scores = junction.data.get('scores') or {}
        if model.value not in scores:
            return None
        entry = scores[model.value]
        try:
            return ModelScore(
                float(entry['quality']),
                entry.get('genotype'),
                tuple(entry.get('filters') or []),
            )
        except (KeyError, TypeError, ValueError) as err:
            raise ScoringError(
                f'malformed {model.value} score for junction {junction.index} of candidate {junction.candidate_id}: {entry}'
            ) from err
