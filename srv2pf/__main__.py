from srv2pf.cli.app import run

if __name__ == "__main__":
    run()
