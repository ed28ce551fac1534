"""
Admission Webhook Server - a mutating admission webhook for Kubernetes.

The server decodes AdmissionReview requests sent by the API server, runs a
fixed set of decision functions against them and answers with a single
aggregated JSON patch or a denial.
"""

__version__ = "0.1.0"
