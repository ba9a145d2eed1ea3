# cli.py — commandes d'exploitation : `flask init-db`, `flask make-admin EMAIL`
import click
from flask import current_app
from flask.cli import with_appcontext

from extensions import db
from models import Professional, ROLE_ADMIN


@click.command("init-db")
@with_appcontext
def init_db():
    """Crée les tables manquantes."""
    db.create_all()
    click.echo("✅ Tables créées.")


@click.command("make-admin")
@click.argument("email")
@with_appcontext
def make_admin(email):
    """Passe un professionnel existant en ADMIN (et le réactive)."""
    email = email.strip().lower()
    click.echo(f"Recherche du professionnel {email}...")
    pro = Professional.query.filter_by(email=email).first()
    if pro is None:
        click.echo(f"❌ Aucun professionnel avec l'email {email}.", err=True)
        click.echo("Il doit s'être connecté au moins une fois avec Google.", err=True)
        raise SystemExit(1)

    pro.role = ROLE_ADMIN
    pro.is_active = True
    db.session.commit()
    current_app.logger.info("Professional %s promu ADMIN", pro.id)
    click.echo(f"✅ {pro.first_name or ''} {pro.last_name or ''} <{pro.email}> est maintenant ADMIN.")
    click.echo("Reconnectez-vous pour voir les changements.")


def register_commands(app):
    from auditor import audit

    app.cli.add_command(init_db)
    app.cli.add_command(make_admin)
    app.cli.add_command(audit)
