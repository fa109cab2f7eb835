"""VaultGate: confined, cached vault access and an OAuth login bridge for agents."""

__version__ = "0.1.0"
