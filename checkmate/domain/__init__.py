"""Domain layer for Checkmate.

Pure models and calculators with no I/O:

- shared: Result monad, error taxonomy, base domain event
- types: effort scale, TagPoints, TaskLocation
- task: Task aggregate, focus ordering, recurring spawner, stats
- sprint: Sprint and Tag entities, sprint health, planning
- routine: Routine entity, activation and task filtering
- ports: protocols for expression evaluation, recurrence and storage
"""
