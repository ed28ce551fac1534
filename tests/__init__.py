"""
Tests package - Test suite for the admission webhook.

Contains:
- unit/: Unit tests for individual components
- fixtures/: AdmissionReview payloads and sample pods
"""
