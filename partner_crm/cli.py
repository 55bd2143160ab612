"""Partners CRM CLI tool (crmctl)."""

import typer

app = typer.Typer(name="crmctl", help="Partners CRM CLI")
db_app = typer.Typer(help="Database management commands")
users_app = typer.Typer(help="User account commands")
app.add_typer(db_app, name="db")
app.add_typer(users_app, name="users")


@db_app.command("init")
def db_init():
    """Create all tables that don't exist yet."""
    import partner_crm.models  # noqa: F401  registers every table on Base.metadata
    from partner_crm.db.base import Base
    from partner_crm.db.session import engine

    Base.metadata.create_all(bind=engine)
    typer.echo(f"✅ Tables ready ({len(Base.metadata.tables)})")


@db_app.command("seed")
def db_seed():
    """Seed system roles and the super admin."""
    from partner_crm.core.config import settings
    from partner_crm.db.session import SessionLocal
    from partner_crm.db.seeds.seed_roles import seed_roles
    from partner_crm.db.seeds.seed_super_admin import seed_super_admin

    db = SessionLocal()
    try:
        added = seed_roles(db)
        typer.echo(f"✅ Seeded {added} roles")
        if seed_super_admin(db):
            typer.echo(f"✅ Created super admin: {settings.SUPER_ADMIN_EMAIL}")
        else:
            typer.echo(f"ℹ️  Super admin '{settings.SUPER_ADMIN_EMAIL}' already exists, skipping.")
    finally:
        db.close()


@db_app.command("reset")
def db_reset(yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation")):
    """Drop and recreate every table (DANGER)."""
    if not yes:
        confirm = typer.confirm("⚠️  This will DROP every table. Continue?")
        if not confirm:
            raise typer.Abort()
    import partner_crm.models  # noqa: F401
    from partner_crm.db.base import Base
    from partner_crm.db.session import engine

    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    typer.echo("✅ Database reset")


@users_app.command("set-password")
def set_password(
    email: str = typer.Argument(..., help="Account email"),
    password: str = typer.Option(..., prompt=True, hide_input=True, confirmation_prompt=True),
):
    """Reset a user's password."""
    from partner_crm.core.exceptions import CRMError
    from partner_crm.db.session import SessionLocal
    from partner_crm.services.auth_service import auth_service

    db = SessionLocal()
    try:
        user = auth_service.set_password(db, email, password)
        typer.echo(f"✅ Password updated for {user.email}")
    except CRMError as e:
        typer.echo(f"❌ {e.message}", err=True)
        raise typer.Exit(code=1)
    finally:
        db.close()


@app.command("serve")
def serve(
    host: str = typer.Option("0.0.0.0", help="Host"),
    port: int = typer.Option(8000, help="Port"),
    reload: bool = typer.Option(False, help="Auto-reload"),
):
    """Start the API server."""
    import uvicorn
    uvicorn.run("partner_crm.main:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    app()
