# -*- coding: utf-8 -*-
"""
flowyield.tests
===============

Unit, integration and property tests for the engine. Shared fixtures live in
`conftest.py`; every test builds its own in-memory `Host`, so nothing leaks
between tests.
"""
