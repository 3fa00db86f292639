from .constants import BEAM_STEPS, DIM_VOCABS, SOURCE_SENTENCES, BeamStep
from .contract import ScorerContractTests

__all__ = ["BEAM_STEPS", "DIM_VOCABS", "SOURCE_SENTENCES", "BeamStep", "ScorerContractTests"]
