"""Real-time infrastructure — authenticated WebSocket update broadcast.

Learn: Everything runs in-process on the application's event loop:
1. Handshake checks the ?token= JWT before a connection is registered
2. The registry tracks every live connection
3. The router answers subscribe/ping and forwards client updates
4. The broadcaster fans an update out to every open connection
5. The liveness monitor probes connections and evicts silent ones
6. The bridge lets REST writes publish updates through the same path
"""
