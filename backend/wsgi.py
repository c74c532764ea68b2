from authentiks import create_app

app = create_app()
