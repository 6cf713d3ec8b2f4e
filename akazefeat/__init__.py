"""AKAZE feature detection in a nonlinear scale space with M-LDB binary descriptors."""

__version__ = "0.7.0"