from datetime import datetime

from sqlalchemy.orm import DeclarativeBase, declared_attr

from utils.thai_date import bangkok_now


def local_now() -> datetime:
     """Naive Asia/Bangkok wall-clock time; every stored timestamp uses this."""
     return bangkok_now().replace(tzinfo=None)


class Base(DeclarativeBase):
     """
     Base class for all SQLAlchemy models.
     Provides common configuration and mixins.
     """

     @declared_attr.directive
     def __tablename__(cls) -> str:
          """
          Automatically generate table name from class name.
          Example: NotificationTemplate -> notification_templates
          """
          import re
          name = re.sub(r'(?<!^)(?=[A-Z])', '_', cls.__name__).lower()
          # Pluralize (simple version)
          if name.endswith('y'):
               return name[:-1] + 'ies'
          elif name.endswith('s'):
               return name + 'es'
          return name + 's'
