"""colormesh: topology synthesis for the color app service mesh demo."""

__version__ = "0.1.0"
