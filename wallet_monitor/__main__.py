from wallet_monitor.main import run


run()
