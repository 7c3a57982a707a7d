from importlib import import_module

modules = [
    'health',
    'scientists',
    'programs',
    'projects',
    'research_activities',
    'patents',
    'publications',
    'ibc_applications',
    'irb_applications',
    'board_members',
    'facilities',
    'role_permissions',
    'journal_impact_factors',
    'dashboard',
    'external',
]

for m in modules:
    import_module(f'.{m}', __name__)

__all__ = modules
