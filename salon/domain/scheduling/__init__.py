"""
Scheduling Domain

Appointment booking, staff availability and the appointment status lifecycle.

Structure:
```
salon/domain/scheduling/
├── time_calculator.py      # Time parsing and interval arithmetic
├── availability_service.py # Staff availability and auto-assignment
├── locks.py                # Per staff/day booking locks
├── lifecycle.py            # Status transitions (confirm, presence, cancel, complete)
├── repository.py           # Appointment database queries
├── schemas.py              # Request/response schemas
├── service.py              # Booking orchestration (create/update) and queries
└── router.py               # /appointments endpoints
```

The periodic Confirmed → InProgress → NoShow sweep lives in
salon/services/status_automation.py next to the worker that runs it.
"""
