"""
Flippy++ web layer (FastAPI).

Routers:
- flippy_web.auth_routes.router   (signup, signin, signout, session, profile)
- flippy_web.card_routes.router   (card groups, explanations, AI flashcards)
- flippy_web.admin_routes.router  (user management, usage analytics)

Mounted by flippy_web.main.create_app().
"""
