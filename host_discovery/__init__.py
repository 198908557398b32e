from .models import Probe, ProbeResult
from .scanner import ScanEngine
from .targets import InvalidRange, address_key, expand_cidr

__all__ = ["InvalidRange", "Probe", "ProbeResult", "ScanEngine", "address_key", "expand_cidr"]
