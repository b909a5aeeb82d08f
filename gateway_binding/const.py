"""Binding identity and the configuration keys accepted on reconfiguration."""

BINDING_ID = "gateway"

# Keys delivered by the host's configuration-change notification,
# listed in the order the reconciler processes them.
BRIDGE_PROTOCOL = "protocol"
BRIDGE_IPADDRESS = "ipAddress"
BRIDGE_TCPPORT = "tcpPort"
BRIDGE_PASSWORD = "password"
BRIDGE_TIMEOUT_MSECS = "timeoutMsecs"
BRIDGE_RETRIES = "retries"
BRIDGE_REFRESH_MSECS = "refreshMsecs"
BRIDGE_IS_BULK_RETRIEVAL_ENABLED = "isBulkRetrievalEnabled"

# Unsigned 32-bit wrap for the refresh cycle counter.
CYCLE_COUNTER_MODULUS = 2**32
