"""Time Clock package.

Feature modules (timelogs, organizations, export) keep the domain rules in
plain functions/services; Flask controllers and storage backends are thin
adapters wired together in ``container``.
"""
