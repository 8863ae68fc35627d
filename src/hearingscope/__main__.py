from hearingscope.cli import main

main()
