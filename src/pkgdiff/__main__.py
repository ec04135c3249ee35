from pkgdiff.cli import app

app()
