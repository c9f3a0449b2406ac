from fuel_price_sheets.cli import app

if __name__ == "__main__":
    app()
