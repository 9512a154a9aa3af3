"""Blend a remote crime estimate into a locally computed safety score."""

from numbers import Real

from safepath.config import ScoringConfig, get_scoring_config
from safepath.crime_data import CrimeEstimate
from safepath.scoring import SafetyScore, combine_subscores, round_half_up


def blend(
    local_score: SafetyScore,
    estimate: CrimeEstimate | None,
    config: ScoringConfig | None = None,
) -> SafetyScore:
    """
    Adjust the crime sub-score by the remote estimate's safety score.

    crime' = crime * (1 - w) + remote * w rounded half up, with w the blend weight;
    the overall score is recomputed from crime' and the unchanged lighting.
    Without a usable estimate the local score is returned as is.
    """
    remote = getattr(estimate, "safety_score", None)
    if estimate is None or not isinstance(remote, Real) or isinstance(remote, bool):
        return local_score

    config = config or get_scoring_config()
    w = config.blend_weight
    crime = round_half_up(local_score.crime * (1 - w) + remote * w)

    return SafetyScore(
        overall=combine_subscores(crime, local_score.lighting, config),
        crime=crime,
        lighting=local_score.lighting,
    )
