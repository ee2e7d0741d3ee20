"""Push a branch, get it through CI into the base branch, cut a release."""

__version__ = "0.1.0"
