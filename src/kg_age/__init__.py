"""
kg_age: administrative client for Apache AGE graphs

Hosts a property graph inside PostgreSQL via the Apache AGE extension:

    Settings → GraphPool → AGE session setup → Graph lifecycle / Cypher queries

Core constraints:
- One explicitly constructed pool handle, passed to every operation
- Graph names validated before they reach SQL; Cypher bodies dollar-quoted
- agtype results decoded into Python values or typed row models
"""

__version__ = "0.1.0"
