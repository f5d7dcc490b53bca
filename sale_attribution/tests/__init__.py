'''
Sale Attribution Test Suite

Test Modules:
-------------
- test_message_parser.py: field extraction from the sales bot message
- test_click_time.py: click time estimation and calendar rollover
- test_ranking.py: campaign grouping, stable ranking and confidence tiers
- test_event_source.py: UTMify event lookup and simulated events
- test_persistence.py: in-memory and Postgres sales history
- test_registration.py: UTMify order payload and registration
- test_orchestrator.py: end-to-end analysis and failure isolation
- test_api.py: HTTP routes, status mapping and auth

Running Tests:
--------------
    pip install -e ".[test]"
    pytest sale_attribution/tests -v
'''

__all__ = []
