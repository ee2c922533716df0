from vanityurls.cli import main

main()
