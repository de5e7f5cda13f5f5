import logging
import time

import click

from timeshop.services.game.draw import InsufficientCoins

from .player import HeadlessPlayer


@click.command('timeshop-play')
@click.option('--url', default='http://localhost:6020', show_default=True, help='Server base URL.')
@click.option('--username', required=True)
@click.option('--password', required=True)
@click.option('--signup', is_flag=True, help='Create the account instead of logging in.')
@click.option('--seconds', default=60, show_default=True, help='How long to keep the session open.')
@click.option('--auto-claim/--no-auto-claim', default=True, help='Claim coin offers as they appear.')
@click.option('--auto-draw/--no-auto-draw', default=False, help='Draw a card whenever affordable.')
def play(url, username, password, signup, seconds, auto_claim, auto_draw):
    """Keep a Time Shop session active without a browser."""
    logging.basicConfig(level=logging.INFO, format='%(asctime)s [%(levelname)s] %(message)s')
    player = HeadlessPlayer(url, username, password)
    state = player.sign_in(create=signup)
    click.echo(f"Signed in as {username}: {state.total_seconds}s played, {player.timer.available_coins} coins")
    player.start()
    try:
        deadline = time.time() + seconds
        while time.time() < deadline:
            time.sleep(0.5)
            if auto_claim and player.timer.coin_offer_pending:
                player.timer.claim_coin()
            if auto_draw and player.timer.available_coins >= player.timer.draw_cost:
                try:
                    click.echo(f"Drew: {player.timer.draw()}")
                except InsufficientCoins as exc:
                    click.echo(str(exc))
    finally:
        player.stop()
    click.echo(f"Session over: {player.timer.state.total_seconds}s played, global {player.global_seconds}s")


if __name__ == '__main__':
    play()
