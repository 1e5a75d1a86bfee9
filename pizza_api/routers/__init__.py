"""
API routers, one per area. Admin routes live under admin/.
"""
