"""torchinstall - CUDA-aware PyTorch installer."""

__version__ = "0.1.0"
