"""bluez-pairing-agent: Interactive BlueZ pairing agent.

Registers an org.bluez.Agent1 implementation on the D-Bus system bus
and answers pairing requests, asking the operator where a decision is
needed.
"""

from .constants import VERSION

__version__ = VERSION
