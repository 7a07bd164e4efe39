"""Concrete mode handlers, one class per thinking mode."""

from deepthinking.modes.handlers.academic import (
    AnalysisHandler,
    ArgumentationHandler,
    CritiqueHandler,
    HistoricalHandler,
    SynthesisHandler,
)
from deepthinking.modes.handlers.advanced import (
    MetaReasoningHandler,
    ModalHandler,
    RecursiveHandler,
    StochasticHandler,
)
from deepthinking.modes.handlers.analytical import (
    AnalogicalHandler,
    FirstPrinciplesHandler,
    FormalLogicHandler,
    ScientificMethodHandler,
    SystemsThinkingHandler,
)
from deepthinking.modes.handlers.causal import (
    BayesianHandler,
    CausalHandler,
    CounterfactualHandler,
    EvidentialHandler,
    TemporalHandler,
)
from deepthinking.modes.handlers.core import (
    HybridHandler,
    MathematicsHandler,
    PhysicsHandler,
    SequentialHandler,
    ShannonHandler,
)
from deepthinking.modes.handlers.custom import CustomHandler
from deepthinking.modes.handlers.engineering import (
    AlgorithmicHandler,
    ComputabilityHandler,
    CryptanalyticHandler,
    EngineeringHandler,
)
from deepthinking.modes.handlers.fundamental import AbductiveHandler, DeductiveHandler, InductiveHandler
from deepthinking.modes.handlers.strategic import ConstraintHandler, GameTheoryHandler, OptimizationHandler

HANDLER_CLASSES = (
    SequentialHandler,
    ShannonHandler,
    MathematicsHandler,
    PhysicsHandler,
    HybridHandler,
    InductiveHandler,
    DeductiveHandler,
    AbductiveHandler,
    CausalHandler,
    TemporalHandler,
    BayesianHandler,
    EvidentialHandler,
    CounterfactualHandler,
    GameTheoryHandler,
    OptimizationHandler,
    ConstraintHandler,
    SynthesisHandler,
    ArgumentationHandler,
    CritiqueHandler,
    AnalysisHandler,
    HistoricalHandler,
    AnalogicalHandler,
    FirstPrinciplesHandler,
    SystemsThinkingHandler,
    ScientificMethodHandler,
    FormalLogicHandler,
    EngineeringHandler,
    ComputabilityHandler,
    CryptanalyticHandler,
    AlgorithmicHandler,
    MetaReasoningHandler,
    RecursiveHandler,
    ModalHandler,
    StochasticHandler,
    CustomHandler,
)

__all__ = [cls.__name__ for cls in HANDLER_CLASSES] + ["HANDLER_CLASSES"]
