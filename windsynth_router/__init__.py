"""
Wind synth router.

Routes a wind controller to a multi-timbral synthesizer and sends
instrument, reverb and NRPN configuration.
"""

from .engine import Engine, create_engine
from .messages import Frame, decode

__all__ = ["Engine", "Frame", "create_engine", "decode"]
