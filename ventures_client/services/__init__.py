"""Services Layer: named domain operations over the request executor.

Invariants:
    - Every operation returns an ApiResult dict ({"success": bool, ...})
    - Services never touch httpx or storage directly: ApiClient and TokenStore only
      (webhooks use their own relay client, never the bearer-carrying executor)
    - Endpoint paths are fixed per operation; payload shapes come from schemas/

Design Decisions:
    - One service per backend area (auth, user, payment, investment, admin)
    - Services receive the executor by injection: one graph per client session
"""
