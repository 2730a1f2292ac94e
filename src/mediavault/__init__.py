"""MediaVault: media library scanning into a local sqlite catalog."""

from mediavault.shared.constants import Application

__version__ = Application.VERSION

__all__ = ["__version__"]
