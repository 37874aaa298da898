from snappyjson.cli import app

app()
