"""deliver: promote a squashed range of commits to a delivery branch."""

__version__ = "0.1.0"
