from fitfuel_admin.app import main

main()
