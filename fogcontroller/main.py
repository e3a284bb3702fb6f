from fogcontroller.cli.ctl import cli_app

app = cli_app


if __name__ == "__main__":
    app()
