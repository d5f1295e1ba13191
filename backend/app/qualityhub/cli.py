"""QualityHub - CLI

数据库初始化、root 管理与服务启动
"""
from __future__ import annotations

from typing import Optional, NoReturn

import typer
from rich import print

from qualityhub.database.config import Base, engine, session_scope
from qualityhub.services.root_service import LAST_ROOT_MESSAGE, RootService
from qualityhub.services.startup_seeds import run_startup_seeds, seed_admin_user

app = typer.Typer(add_completion=False, help="QualityHub CLI")


def _info(msg: str) -> None:
    print(f"[cyan][QH][/cyan] {msg}")


def _ok(msg: str) -> None:
    print(f"[green][QH][OK][/green] {msg}")


def _fail(msg: str, code: int = 1) -> NoReturn:
    print(f"[red][QH][FAIL][/red] {msg}")
    raise typer.Exit(code)


@app.command("init-db")
def init_db(
    admin_login: Optional[str] = typer.Option(None, "--admin-login", help="同时创建 root 管理员"),
    admin_password: Optional[str] = typer.Option(None, "--admin-password"),
) -> None:
    """创建数据表并写入默认数据"""
    _info(f"Initializing database {engine.url}")
    Base.metadata.create_all(bind=engine)
    with session_scope() as db:
        organization = run_startup_seeds(db)
        if admin_login:
            if not admin_password:
                _fail("--admin-password is required with --admin-login")
            if seed_admin_user(db, organization, admin_login, admin_password) is None:
                _info(f"User {admin_login} already exists")
    _ok("Database initialized")


@app.command("set-root")
def set_root(
    login: str = typer.Argument(..., help="用户登录名"),
    unset: bool = typer.Option(False, "--unset", help="取消 root"),
) -> None:
    """设置或取消用户的 root 标记"""
    with session_scope() as db:
        user = RootService.find_active_user(db, login)
        if user is None:
            _fail(f"User {login} not found")
        if unset and user.is_root and not RootService.can_unset_root(db, user):
            _fail(LAST_ROOT_MESSAGE)
        user.is_root = not unset
        db.commit()
    _ok(f"{login}: root={not unset}")


@app.command("serve")
def serve(
    host: str = typer.Option("127.0.0.1", "--host"),
    port: int = typer.Option(8000, "--port"),
    reload: bool = typer.Option(False, "--reload"),
) -> None:
    """启动 API 服务"""
    import uvicorn

    _info(f"Serving on http://{host}:{port}")
    uvicorn.run("qualityhub.main:app", host=host, port=port, reload=reload)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
