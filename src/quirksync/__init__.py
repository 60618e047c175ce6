"""quirksync — sync password-manager quirks into Remote Settings."""

__version__ = "0.3.0"
