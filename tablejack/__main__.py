from tablejack.blackjack.console import main

main()
