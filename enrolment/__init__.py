"""Student Enrolment - Core Application Package

This package contains the core application modules including:
- API endpoints (api.py)
- Domain entities (student.py, book.py, rental.py)
- Transfer objects and wire models (dto.py, schemas.py, mappers.py)
- Business services (services/)
- Database layer (database.py, repositories.py)
"""

__version__ = "1.0.0"
