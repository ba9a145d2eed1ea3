# auditor.py
import inspect
from collections import defaultdict

import click
from flask import current_app as app
from flask.cli import with_appcontext


def collect_route_report():
    """Collisions de règles, fonctions multi-endpoints et routes /api sans garde."""
    rule_map = defaultdict(list)
    for rule in app.url_map.iter_rules():
        methods = tuple(sorted((rule.methods or set()) - {"HEAD", "OPTIONS"}))
        rule_map[(rule.rule, methods)].append(rule.endpoint)

    collisions = []
    for (rule, methods), eps in rule_map.items():
        if len(set(eps)) > 1:
            collisions.append((rule, list(methods), sorted(set(eps))))

    func_to_eps = defaultdict(list)
    for ep, fn in app.view_functions.items():
        func_to_eps[fn].append(ep)
    multi = {fn: eps for fn, eps in func_to_eps.items() if len(eps) > 1}

    # login_required / admin_required posent __wrapped__ (functools.wraps)
    unguarded = sorted(
        rule.rule for rule in app.url_map.iter_rules()
        if rule.rule.startswith("/api")
        and not hasattr(app.view_functions[rule.endpoint], "__wrapped__")
    )
    return collisions, multi, unguarded


@click.command("audit")
@with_appcontext
def audit():
    """
    Audit des routes :
    - Collisions de règles (même URL+methods -> endpoints différents)
    - Fonctions exposées sous plusieurs endpoints (soupçon de doublons)
    - Routes /api accessibles sans session
    """
    collisions, multi, unguarded = collect_route_report()

    def _section(title):
        click.echo("\n" + title)
        click.echo("-" * len(title))

    click.echo("=== AUDIT ROUTES ===")
    click.echo(f"- endpoints enregistrés: {len(app.view_functions)}")

    _section("A. Collisions de règles (même URL+methods -> endpoints différents)")
    if collisions:
        for rule, methods, eps in collisions:
            click.echo(f"  ! {rule} {methods} -> {eps}")
    else:
        click.echo("  OK : aucune collision.")

    _section("B. Fonctions exposées sous plusieurs endpoints (doublons possibles)")
    if multi:
        for fn, eps in multi.items():
            name = getattr(fn, "__name__", str(fn))
            file = inspect.getsourcefile(fn) or "<?>"
            click.echo(f"  ? {name} ({file}): {eps}")
    else:
        click.echo("  OK : aucun doublon de fonction exposée.")

    _section("C. Routes /api publiques (sans login_required / admin_required)")
    for rule in unguarded:
        click.echo(f"  · {rule}")

    click.echo("\nRésumé:")
    click.echo(f"  Collisions: {len(collisions)}  |  Doublons-fn: {len(multi)}  |  Publiques: {len(unguarded)}")
