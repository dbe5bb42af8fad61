"""Provisioning and HA pairing for NetScaler VPX load-balancer appliances."""

__version__ = '0.1.0'
