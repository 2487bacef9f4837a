from wabot.payments.server import run

run()
