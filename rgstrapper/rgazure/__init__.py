"""
Azure control-plane layer: the 'az' runner, the client interface, context
verification and the idempotent ensure-operations.
"""
