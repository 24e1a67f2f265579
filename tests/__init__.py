"""
quizstreak Test Suite
=====================

Test Organization
-----------------
- tests/unit/          : Fast tests of the pure core and services with mocks
- tests/integration/   : Services against an in-memory SQLite database

Testing Philosophy
------------------
- Use pytest markers (unit, domain, integration, database) to select tests
- Follow AAA pattern: Arrange, Act, Assert
"""
