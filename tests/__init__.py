"""
Test suite for the scheduling assistant backend.

Running Tests:
    # Run all unit tests
    pytest tests/unit -v

    # Run one component
    pytest tests/unit/test_turn_processor.py -v

No Redis or provider credentials are needed: the history store and the
inference providers are replaced with in-memory fakes or mocked transports.
"""
