"""A Kubernetes Operator that binds application workloads to backing
services through an intermediary secret.
"""
