"""Datadog identity connector.

Enumerates users, teams and roles from Datadog with resumable pagination,
projects them into a uniform entitlement/grant graph, and grants or revokes
team and role membership upstream.
"""
