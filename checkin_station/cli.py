# =======================================================================================
# checkin_station/cli.py - Operator Command Line
# =======================================================================================
"""
Operator commands for the check-in station.

    checkin-station serve                 # run the local API
    checkin-station login staff@example.com
    checkin-station scan building         # manual entry at the entrance
    checkin-station scan session --event <id> --camera
"""
import time

import click

from .config import config
from .models.enums import CheckInType, PageView, ScanState
from .services.api_client import BackendClient
from .services.checkin_page import CheckInPage
from .services.decoder import ManualDecoder
from .services.presenter import render_result_text, render_stats_text
from .services.role_gate import landing_for
from .services.session_context import SessionContext
from .utils.exceptions import CheckInStationError
from .workers.camera_worker import CameraDecoder

POLL_INTERVAL_SECONDS = 0.2


def _station():
    session = SessionContext()
    client = BackendClient(token_provider=lambda: session.token)
    session.bind_client(client)
    return session, client


@click.group()
def cli():
    """Symposium check-in station."""


@cli.command()
@click.option("--host", default=None, help="Bind address (defaults to API_HOST)")
@click.option("--port", default=None, type=int, help="Port (defaults to API_PORT)")
def serve(host, port):
    """Run the local check-in API."""
    import uvicorn

    uvicorn.run(
        "checkin_station.main:app",
        host=host or config.API_HOST,
        port=port or config.API_PORT,
        log_level="debug" if config.API_DEBUG else "info",
    )


@cli.command()
@click.argument("email")
@click.password_option(confirmation_prompt=False)
def login(email, password):
    """Sign the station in with a staff account."""
    session, client = _station()
    try:
        auth = client.login(email, password)
        session.sign_in(auth.token, auth.user)
        profile = auth.user or session.load_profile().profile
    except CheckInStationError as e:
        raise click.ClickException(str(e))

    if profile is None:
        click.echo("Signed in (profile unavailable, server offline)")
        return
    click.echo(f"Signed in as {profile.name} ({profile.role})")
    click.echo(f"Scanner: {landing_for(profile.role_enum)}")


@cli.command()
def logout():
    """Forget the stored credential."""
    session, _ = _station()
    session.invalidate()
    click.echo("Signed out")


@cli.command()
def whoami():
    """Show the signed-in operator."""
    session, _ = _station()
    if not session.token:
        raise click.ClickException("Not signed in")
    try:
        lookup = session.load_profile()
    except CheckInStationError as e:
        raise click.ClickException(str(e))

    profile = lookup.profile
    suffix = " [offline, cached]" if lookup.offline else ""
    if profile is None:
        click.echo(f"Signed in (profile unavailable){suffix}")
        return
    click.echo(f"{profile.name} <{profile.email}> role={profile.role}{suffix}")


@cli.command()
@click.option("--all", "show_all", is_flag=True, help="Include completed and cancelled events")
def events(show_all):
    """List events open for session check-in."""
    _, client = _station()
    try:
        catalog = client.fetch_all_events()
    except CheckInStationError as e:
        raise click.ClickException(str(e))

    for event in catalog:
        if show_all or event.is_active:
            click.echo(f"{event.id}  {event.date} {event.startTime:<5}  {event.title} @ {event.venue} [{event.status}]")


def _show(page: CheckInPage):
    view = page.view()
    click.echo(render_result_text(view.result))
    click.echo(render_stats_text(view.stats))


def _manual_loop(page: CheckInPage, decoder: ManualDecoder):
    while True:
        qr_code = click.prompt("QR code (blank to quit)", default="", show_default=False)
        if not qr_code.strip():
            return
        if not decoder.submit(qr_code):
            click.echo("Scanner busy, try again")
            continue
        if page.orchestrator.state == ScanState.RESULT:
            _show(page)
        if page.reset().view == PageView.LOGIN_REQUIRED:
            raise click.ClickException("Session expired. Please log in again.")


def _camera_loop(page: CheckInPage):
    click.echo("Scanning... (Ctrl+C to quit)")
    try:
        while True:
            view = page.view()
            if view.scanner.error:
                click.echo(f"Scanner error: {view.scanner.error}")
                if not click.confirm("Retry?", default=True):
                    return
                page.retry_scanner()
                continue
            if page.orchestrator.state == ScanState.RESULT:
                _show(page)
                click.prompt("Press Enter to scan next", default="", show_default=False)
                if page.reset().view == PageView.LOGIN_REQUIRED:
                    raise click.ClickException("Session expired. Please log in again.")
                continue
            time.sleep(POLL_INTERVAL_SECONDS)
    except KeyboardInterrupt:
        click.echo()


@cli.command()
@click.argument("check_in_type", type=click.Choice([t.value for t in CheckInType]))
@click.option("--event", "event_id", default=None, help="Event id for session check-in")
@click.option("--camera", is_flag=True, help="Decode from the local camera instead of typed input")
def scan(check_in_type, event_id, camera):
    """Run a check-in scanner in the terminal."""
    session, client = _station()
    decoder = CameraDecoder() if camera else ManualDecoder()
    page = CheckInPage(CheckInType(check_in_type), session, client, decoder=decoder)

    try:
        view = page.mount()
        if view.view not in (PageView.SCANNING, PageView.SELECT_EVENT):
            raise click.ClickException(view.message or view.view.value)

        if view.view == PageView.SELECT_EVENT:
            if view.message:
                raise click.ClickException(view.message)
            if event_id is None:
                for event in view.events:
                    click.echo(f"{event.id}  {event.title} @ {event.venue} [{event.status}]")
                event_id = click.prompt("Event id")
            view = page.select_event(event_id)
            click.echo(f"Session check-in: {view.selectedEvent.title}")

        if camera:
            _camera_loop(page)
        else:
            _manual_loop(page, decoder)
    except CheckInStationError as e:
        raise click.ClickException(str(e))
    finally:
        page.unmount()


if __name__ == "__main__":
    cli()
