from lorachat.main import run

run()
