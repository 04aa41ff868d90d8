from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from config.settings import DatabaseSettings

# DATABASE_URL 또는 SQL_* 환경변수로 지정된 저장소에 SQLAlchemy 엔진을 만든다.
database_settings = DatabaseSettings()

engine = create_engine(
    database_settings.url,
    echo=database_settings.echo,
    pool_pre_ping=True,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def init_db_schema(bind=None):
    """
    테이블이 없을 경우를 대비해 스키마를 생성합니다.
    """
    # 모델 모듈을 import 해야 Base.metadata 에 테이블이 등록된다.
    import hashtag.infrastructure.orm.models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
