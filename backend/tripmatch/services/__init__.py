# Services package init
"""
TripMatch Backend — Services Layer
====================================

What:  Business rules between the HTTP routes and the database.
How:   Services take an AsyncSession as their first argument and never
       commit; the request-scoped session dependency commits or rolls back.
       Collaborators are passed to constructors, and each module exposes a
       ready-wired singleton (event_service, membership_service, ...).

Service Inventory:
    - event_queries:        live-event lookup, atomic capacity updates, serialization
    - EventService:         event CRUD, complete, cover/photo uploads
    - MembershipService:    join / leave / confirm / cancel state machine
    - SwipeService:         like/pass upserts
    - SuggestionService:    candidate selection and ranking (scores in matching.py)
    - TagService, InterestService,
      FoodPreferenceService, TravelPreferenceService: taxonomy and user preferences
    - ChatService:          per-event rooms gated on confirmed membership
    - HistoryService:       participation history and user stats
    - FileService:          image validation on top of ObjectStorage
                            (LocalFileStorage or WebDAVStorage)
"""
