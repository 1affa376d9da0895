import click

from config import DevelopmentConfig
from foodapp import create_app, db, socketio

app = create_app(DevelopmentConfig)


@app.cli.command()
def setup_db():
    """Setup database and create tables"""
    db.create_all()
    click.echo("Database tables created!")


if __name__ == '__main__':
    socketio.run(app, host='0.0.0.0', port=3001)
