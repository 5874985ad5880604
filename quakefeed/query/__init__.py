"""
Query construction and validation.

Modules:
    time_utils  — local components ↔ UTC instants
    models      — QueryDescriptor, EarthquakeRecord, ResultSet, enums
    validation  — ordered legality checks, ValidationResult
    builder     — immutable fluent EarthquakeQuery
"""
