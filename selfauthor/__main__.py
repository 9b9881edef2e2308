from selfauthor.main import run

run()
