"""
Services Layer

Pure business logic services that:
- Accept domain inputs (IDs, sessions, fighter lists)
- Return domain outputs (generated matches, reports, synthesis results)
- Do NOT depend on HTTP request/response objects
- Persist through a Session directly or, for bracket synthesis, through
  the repositories module
"""
