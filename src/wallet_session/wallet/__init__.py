"""Wallet providers for Ethereum-compatible networks.

Includes the provider capability a session consumes, a JSON-RPC backed
provider, a keystore-backed in-process provider, and the registry of
supported chains (Ethereum, Sepolia, Base, Arbitrum, Polygon).
"""
