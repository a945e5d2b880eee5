"""refpoints - referral rewards platform for shops and their customers."""

__version__ = "0.1.0"
