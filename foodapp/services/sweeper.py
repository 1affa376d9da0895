# Background auto-completion of stale deliveries
import logging
from datetime import timedelta

import click

from foodapp.errors import FoodAppError
from foodapp.models import OrderStatus

logger = logging.getLogger(__name__)


class AutoCompletionSweeper:
    """Force-delivers orders stuck in DELIVERING.

    Every pass goes through the lifecycle engine's ``advance`` so stale
    orders get the same transition checks and sold-count updates as a
    manual status change.
    """

    def __init__(self, app, interval_seconds=300, stale_minutes=60):
        self.app = app
        self.interval_seconds = interval_seconds
        self.stale_after = timedelta(minutes=stale_minutes)
        self._running = False

    def run_once(self):
        """One sweep; returns the ids of the orders it delivered"""
        from foodapp import db
        from foodapp.container import build_container

        delivered = []
        with self.app.app_context():
            services = build_container(self.app, db.session)
            cutoff = services.clock() - self.stale_after
            stale_ids = services.order_repo.stale_in_status(OrderStatus.DELIVERING, cutoff)
            if stale_ids:
                logger.info(f"Sweeper found {len(stale_ids)} stale deliveries")

            for order_id in stale_ids:
                try:
                    services.lifecycle.advance(order_id, OrderStatus.DELIVERED.value, actor='sweeper')
                    delivered.append(order_id)
                except FoodAppError as e:
                    logger.warning(f"Sweeper skipped order {order_id}: {e.kind}: {e.message}")
                except Exception:
                    logger.exception(f"Sweeper failed on order {order_id}")
                    db.session.rollback()
        return delivered

    def _run_forever(self, socketio):
        while self._running:
            socketio.sleep(self.interval_seconds)
            try:
                self.run_once()
            except Exception:
                logger.exception("Sweeper pass failed")

    def start(self, socketio):
        if self._running:
            return
        self._running = True
        logger.info(f"Starting order sweeper every {self.interval_seconds}s")
        socketio.start_background_task(self._run_forever, socketio)

    def stop(self):
        self._running = False


def register_sweeper_command(app):
    @app.cli.command('sweep-orders')
    def sweep_orders():
        """Deliver orders stuck in DELIVERING"""
        delivered = app.extensions['order_sweeper'].run_once()
        click.echo(f"Delivered {len(delivered)} stale orders")
