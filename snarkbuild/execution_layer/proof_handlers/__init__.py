from .base_handler import ProvingBackend
from .snarkjs_handler import SnarkjsHandler

__all__ = ["ProvingBackend", "SnarkjsHandler"]
