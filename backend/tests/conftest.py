"""
QualityHub 测试配置

统一管理测试数据库初始化，确保所有模型都被导入和注册。
每个测试使用全新的数据库，并写入默认组织等启动数据。
"""
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from qualityhub.database.config import Base, get_db
from qualityhub.api.deps.auth_deps import get_user_session
from qualityhub.main import app
from qualityhub.services.startup_seeds import run_startup_seeds
from tests.db_tester import DbTester
from tests.user_session_rule import MockUserSession

# 使用文件数据库进行测试（内存数据库有连接隔离问题）
SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    """覆盖数据库依赖"""
    try:
        db = TestingSessionLocal()
        yield db
    finally:
        db.close()


@pytest.fixture(autouse=True)
def setup_database():
    """每个测试前创建所有表并写入启动数据，测试后清理"""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        run_startup_seeds(session)
    finally:
        session.close()
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db(setup_database):
    """提供数据库会话"""
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def db_tester(db):
    """测试数据插入工具"""
    return DbTester(db)


@pytest.fixture
def user_session():
    """可在测试中设置身份和权限的用户会话（默认匿名）"""
    return MockUserSession()


@pytest.fixture(autouse=True)
def apply_overrides(user_session):
    """每个测试自动应用依赖覆盖，并在结束后恢复"""
    old_overrides = app.dependency_overrides.copy()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_user_session] = lambda: user_session

    yield

    app.dependency_overrides = old_overrides


@pytest.fixture
def client():
    """提供测试客户端"""
    from fastapi.testclient import TestClient
    return TestClient(app)
