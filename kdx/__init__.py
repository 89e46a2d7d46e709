"""kdx: Kubernetes cluster exploration and discovery."""

__version__ = "0.1.0"
