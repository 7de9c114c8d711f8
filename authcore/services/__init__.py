"""
Auth Core - Services Module

Business logic layer: the credential service, its error taxonomy, the
identity directory adapter and login code delivery.
"""
