"""Training components: losses, optimisers, the network and run pipelines."""

from .losses import REGISTRY, BinaryCrossEntropy, Loss, LossRegistry, MeanSquaredError
from .network import ActivationStage, DenseStage, Network, NetworkState
from .optim import AdamOptimizer, Optimizer, SGDOptimizer, make_optimizer

__all__ = [
    "ActivationStage",
    "AdamOptimizer",
    "BinaryCrossEntropy",
    "DenseStage",
    "Loss",
    "LossRegistry",
    "MeanSquaredError",
    "Network",
    "NetworkState",
    "Optimizer",
    "REGISTRY",
    "SGDOptimizer",
    "make_optimizer",
]
