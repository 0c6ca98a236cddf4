"""binstall — platform-matrix binary artifact installer."""

__version__ = "0.1.0"
