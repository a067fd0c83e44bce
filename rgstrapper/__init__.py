"""
rgstrapper: bootstrap an Azure resource group with an Owner-scoped user-assigned managed identity.
"""

__version__ = "0.1.0"
