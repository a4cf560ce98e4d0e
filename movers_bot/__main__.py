from movers_bot.main import main

main()
