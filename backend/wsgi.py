from stocknexus import create_app

app = create_app()
