# Routes package init
"""
TripMatch Backend — API Routes Package
========================================

Route Inventory (all under /api/v1 unless noted):
    - events.py:       /events CRUD, membership transitions, swipes, media,
                       event tags and the event's chat room
    - public.py:       /public/events (no authentication)
    - suggestions.py:  /suggestions
    - tags.py:         /tags, /users/me/tags, /interests, /users/me/interests
    - preferences.py:  /preferences/food/..., /preferences/travel/...
    - chat.py:         /chat/rooms/...
    - history.py:      /history/...
    - files.py:        /api/files/{path}  (local storage only)
    - health.py:       /health

Routes stay thin: parse the request, call one service method, shape the
response (status code, X-Total-Count).
"""
