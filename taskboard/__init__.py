# Task board client: optimistic task store over the /tasks REST resource
#
# Components:
#   schema.py      - Data model (Task, Column, TaskFormData) and wire codec
#   forms.py       - Synchronous form validation (ValidationError)
#   store.py       - Client-side task cache with subscribe/notify
#   api.py         - HTTP client for the /tasks resource
#   optimistic.py  - Apply / send / compensate helper for optimistic mutations
#   coordinator.py - Move, create, update, delete with rollback and refetch
#   drag.py        - Pointer drag state machine producing move intents
#   board.py       - Board view: column grouping, search, text rendering
#   events.py      - Notification center (success/error signals)
#   config.py      - YAML + environment configuration
#   app.py         - Wires a board (store, coordinator, search, drag) from Config
