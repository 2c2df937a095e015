"""godar: aircraft proximity monitoring for Virtual Radar Server feeds."""

__version__ = "0.3.0"
